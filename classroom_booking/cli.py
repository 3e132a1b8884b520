import click
from classroom_booking import db as database
from classroom_booking.errors import ValidationError
from classroom_booking.models.enums import Role
from classroom_booking.storage.sql import SqlStorage
from classroom_booking.utils.auth import get_password_hash
from classroom_booking.utils.seed import seed_default_rooms


@click.group()
def cli():
    """Classroom booking administration."""
    database.init_database()


@cli.command("create-admin")
@click.argument("username")
@click.argument("email")
@click.option("--name", default="Administrator", show_default=True)
@click.password_option()
def create_admin(username, email, name, password):
    """Create an admin account (bootstrap)."""
    session = database.SessionLocal()
    try:
        user = SqlStorage(session).create_user(
            {
                "username": username.strip(),
                "email": email.strip().lower(),
                "name": name,
                "role": Role.ADMIN,
                "hashed_password": get_password_hash(password),
            }
        )
    except ValidationError as e:
        raise click.ClickException(e.message)
    finally:
        session.close()
    click.echo(f"{user.username} created as admin (id {user.id})")


@cli.command("seed-rooms")
def seed_rooms():
    """Insert the default classrooms that are missing."""
    session = database.SessionLocal()
    try:
        created = seed_default_rooms(SqlStorage(session))
    finally:
        session.close()
    click.echo(f"{created} rooms added")


if __name__ == "__main__":
    cli()
