import asyncio
from sqlmodel import select
from src.db.main import async_session_maker, init_db
from src.auth.models import User, Role
from src.utils.auth import generate_password_hash

async def create_user(email: str, full_name: str, password: str, role: str):
    try:
        role_enum = Role(role.lower())
    except ValueError:
        print(f"Error: unknown role '{role}'. Choose from: {', '.join(r.value for r in Role)}")
        return

    await init_db()

    async with async_session_maker() as session:
        # Check if user already exists
        statement = select(User).where(User.email == email.lower())
        result = await session.exec(statement)
        existing_user = result.first()

        if existing_user:
            print(f"Error: User with email '{email}' already exists.")
            return

        new_user = User(
            email=email.lower(),
            full_name=full_name,
            password_hash=generate_password_hash(password),
            role=role_enum
        )

        session.add(new_user)
        try:
            await session.commit()
            await session.refresh(new_user)
            print("Successfully created user!")
            print(f"Email: {new_user.email}")
            print(f"Full Name: {new_user.full_name}")
            print(f"User ID: {new_user.user_id}")
            print(f"Role: {new_user.role.value}")
        except Exception as e:
            await session.rollback()
            print(f"Failed to create user: {e}")

if __name__ == "__main__":
    import sys

    if len(sys.argv) == 5:
        # python seed_users.py <email> <full_name> <password> <role>
        email = sys.argv[1]
        full_name = sys.argv[2]
        password = sys.argv[3]
        role = sys.argv[4]
        asyncio.run(create_user(email, full_name, password, role))
    else:
        print("Usage: python seed_users.py <email> <full_name> <password> <role>")
        print("Example: python seed_users.py admin@example.com 'Admin User' mysecretpassword admin")
