"""
Crea (o promueve) la cuenta administradora de la plataforma.

Uso:
    python scripts/create_admin.py <email> <password> [nombre]

Si el email ya existe, el usuario pasa a rol ADMIN y se actualiza su
contraseña. Si no existe, se crea.
"""

import asyncio
import sys
from pathlib import Path

from sqlalchemy import select

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dental_marketplace.core.security import hash_password  # noqa: E402
from dental_marketplace.database import async_session_factory, engine  # noqa: E402
from dental_marketplace.models import User, UserRole  # noqa: E402


async def create_admin(email: str, password: str, name: str) -> None:
    email = email.strip().lower()

    async with async_session_factory() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            user.role = UserRole.ADMIN
            user.hashed_password = hash_password(password)
            user.is_active = True
            action = "promovido"
        else:
            db.add(
                User(
                    email=email,
                    hashed_password=hash_password(password),
                    name=name,
                    role=UserRole.ADMIN,
                )
            )
            action = "creado"

        await db.commit()

    await engine.dispose()
    print(f"Administrador {action}: {email}")


def main():
    if len(sys.argv) < 3:
        print("Uso: python scripts/create_admin.py <email> <password> [nombre]")
        sys.exit(1)

    email, password = sys.argv[1], sys.argv[2]
    name = sys.argv[3] if len(sys.argv) > 3 else "Administrador"

    if len(password) < 8:
        print("ERROR: la contraseña debe tener al menos 8 caracteres")
        sys.exit(1)

    asyncio.run(create_admin(email, password, name))


if __name__ == "__main__":
    main()
