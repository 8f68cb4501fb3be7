"""
Reset a user's password and re-activate the account.

Usage: python scripts/reset_admin_password.py <email> <new_password>
"""
import asyncio
import sys

from bucket_panel.database import database
from bucket_panel.services.user_service import user_service
from bucket_panel.utils.passwords import MAX_PASSWORD_BYTES


async def reset(email: str, password: str) -> int:
    """Returns the process exit code"""
    database.initialize()
    try:
        user = await user_service.reset_password(email, password)
    finally:
        database.close()

    if user is None:
        print(f"❌ Nenhum usuário encontrado com o e-mail {email}.")
        return 2

    print(f"✅ Senha atualizada com sucesso para {email}.")
    return 0


def main():
    """Main function"""
    if len(sys.argv) != 3:
        print("Uso: python scripts/reset_admin_password.py <email> <nova_senha>")
        sys.exit(1)

    email, password = sys.argv[1], sys.argv[2]
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"❌ A senha deve ter no máximo {MAX_PASSWORD_BYTES} bytes.")
        sys.exit(1)

    try:
        sys.exit(asyncio.run(reset(email, password)))
    except Exception as e:
        print(f"❌ Falha ao atualizar a senha: {e}")
        sys.exit(3)


if __name__ == "__main__":
    main()
