"""
Genera las claves de la API para el archivo .env:

    python scripts/generate_keys.py          # secreto HS256 + FERNET_KEY
    python scripts/generate_keys.py --rsa    # además, par RSA para RS256

Las claves RSA se escriben en ./keys/ (private.pem, public.pem).
"""

import secrets
import sys
from pathlib import Path

from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

KEYS_DIR = Path(__file__).resolve().parent.parent / "keys"


def write_rsa_pair(keys_dir: Path) -> None:
    keys_dir.mkdir(exist_ok=True)
    private_key_path = keys_dir / "private.pem"
    public_key_path = keys_dir / "public.pem"

    if private_key_path.exists():
        response = input(f"Ya existen claves en {keys_dir}. ¿Regenerar? (s/N): ")
        if response.strip().lower() != "s":
            print("Se conservan las claves RSA existentes.")
            return

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_key_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_key_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    print(f"Par RSA generado en {keys_dir}")


def main():
    use_rsa = "--rsa" in sys.argv[1:]

    lines = [f"FERNET_KEY={Fernet.generate_key().decode()}"]
    if use_rsa:
        write_rsa_pair(KEYS_DIR)
        lines += [
            "JWT_ALGORITHM=RS256",
            "JWT_PRIVATE_KEY_PATH=./keys/private.pem",
            "JWT_PUBLIC_KEY_PATH=./keys/public.pem",
        ]
    else:
        lines += [
            "JWT_ALGORITHM=HS256",
            f"JWT_SECRET_KEY={secrets.token_urlsafe(48)}",
        ]

    print("\nAgrega a tu .env:")
    for line in lines:
        print(f"   {line}")


if __name__ == "__main__":
    main()
