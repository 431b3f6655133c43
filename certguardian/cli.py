"""Flask CLI commands: `flask --app certguardian.app init-db | create-admin | notify-expirations`."""
import json
import logging

import click
from flask import Flask
from werkzeug.security import generate_password_hash

from certguardian import database
from certguardian.application.auth_service import validate_password_strength
from certguardian.container import get_expiration_alert_service, get_uow
from certguardian.domain.exceptions import ValidationError
from certguardian.models_db import User, UserRole

logger = logging.getLogger(__name__)


def create_admin(uow, username, email, password, name="Administrador"):
    """
    Cria um usuário ADMIN, ou promove o existente com o mesmo username/email.

    Returns (user, created).
    """
    existing = uow.users.get_by_username(username) or uow.users.get_by_email(email)
    if existing:
        if existing.role != UserRole.ADMIN:
            existing.role = UserRole.ADMIN
            uow.commit()
            logger.info(f"Usuário {existing.username} promovido a ADMIN")
        return existing, False

    validate_password_strength(password)
    user = User(
        username=username,
        email=email.lower(),
        password=generate_password_hash(password),
        name=name,
        role=UserRole.ADMIN,
    )
    uow.users.add(user)
    uow.commit()
    logger.info(f"Admin criado: {username}")
    return user, True


def register_commands(app: Flask):
    @app.cli.command('init-db')
    def init_db_command():
        """Create every table from the ORM metadata."""
        database.create_all()
        click.echo("Tabelas criadas.")

    @app.cli.command('create-admin')
    @click.option('--username', prompt='Username do Admin')
    @click.option('--email', prompt='Email do Admin')
    @click.option('--name', default='Administrador', show_default=True)
    @click.password_option('--password', prompt='Senha do Admin')
    def create_admin_command(username, email, name, password):
        """Create an admin account, or promote an existing one."""
        try:
            user, created = create_admin(get_uow(), username, email, password, name)
        except ValidationError as e:
            raise click.ClickException(e.message) from e

        if created:
            click.echo(f"Admin criado com sucesso! Login: {user.username}")
        else:
            click.echo(f"Usuário {user.username} já existe; perfil ADMIN garantido.")

    @app.cli.command('notify-expirations')
    def notify_expirations_command():
        """E-mail admins about certificates hitting an alert threshold today."""
        result = get_expiration_alert_service().run()
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
