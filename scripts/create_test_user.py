"""Create a test user with known credentials for development"""
import asyncio

from core.database import AsyncSessionLocal
from repositories.user_repo import UserRepository

USERNAME = "testuser"
PASSWORD = "testpass123"


async def create_test_user():
    async with AsyncSessionLocal() as db:
        user_repo = UserRepository(db)

        if await user_repo.exists_by_username(USERNAME):
            print(f"User '{USERNAME}' already exists")
            print("\nLogin with:")
            print(f"  Username: {USERNAME}")
            print(f"  Password: {PASSWORD}")
            return

        await user_repo.create_user(
            username=USERNAME,
            email="testuser@example.com",
            password=PASSWORD,
            name="Test User",
        )
        await db.commit()

        print("Test user created successfully!")
        print("\nLogin credentials:")
        print(f"  Username: {USERNAME}")
        print(f"  Password: {PASSWORD}")
        print("\nTest login (session cookies are written to cookies.txt):")
        print(f"""
curl -X POST http://localhost:8080/auth/login \\
  -c cookies.txt \\
  -H "Content-Type: application/json" \\
  -d '{{"username": "{USERNAME}", "password": "{PASSWORD}"}}'
        """)


if __name__ == "__main__":
    asyncio.run(create_test_user())
