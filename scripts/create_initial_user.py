"""Bootstrap the account that publishes announcements to every user.

Announcements are the only notifications not triggered by another user's
action, so a fresh deployment needs at least one admin before anything can
be broadcast. Run with ``--promote`` to hand that right to an existing
account instead of creating a new one.
"""

from __future__ import annotations

import argparse
from getpass import getpass

from sqlalchemy.exc import SQLAlchemyError

from cards.application.use_cases.users import create_user, grant_announcer
from cards.domain.entities import User
from cards.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Set up an account allowed to broadcast announcements.",
    )
    parser.add_argument(
        "--email",
        default="anuncios@example.com",
        help="Correo de la cuenta que publicará anuncios (por defecto: anuncios@example.com)",
    )
    parser.add_argument(
        "--name",
        default="anuncios",
        help="Nombre visible en los anuncios al crear la cuenta (por defecto: anuncios)",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Contraseña de la cuenta nueva; se pide por consola si se omite.",
    )
    parser.add_argument(
        "--promote",
        action="store_true",
        help="No crear nada: dar permiso de anuncios a la cuenta existente con ese correo.",
    )
    return parser.parse_args()


def _setup_announcer(session, args: argparse.Namespace) -> User:
    if args.promote:
        return grant_announcer(session, email=args.email)

    password = args.password or getpass("Contraseña para la cuenta de anuncios: ")
    if not password:
        raise SystemExit("Se necesita una contraseña para crear la cuenta.")
    return create_user(
        session,
        name=args.name,
        email=args.email,
        password=password,
        is_admin=True,
    )


def main() -> None:
    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        user = _setup_announcer(session, args)
    except ValueError as exc:
        session.rollback()
        raise SystemExit(f"No se pudo preparar la cuenta de anuncios: {exc}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"La base de datos rechazó el cambio: {exc}") from exc
    else:
        action = "promovida" if args.promote else "creada"
        print(f"Cuenta de anuncios {action}: #{user.id} {user.name} <{user.email}>")
        print("Ya puede publicar en POST /notifications/announcements.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
