"""
Управление проектом - CLI команды.

Использование:
    python manage.py check-db
    python manage.py reset-db
    python manage.py seed-db
    python manage.py create-tables
    python manage.py cleanup-creators
"""

import argparse

from comicstop.core.database import Base, engine, SessionLocal
from comicstop.core.errors import ConflictError
from comicstop.core.models import User
from comicstop.core.security import hash_password
from comicstop.repositories.user_repository import UserRepository
from comicstop.services.auth_service import AuthService


def check_db():
    """Проверка базы данных - показать всех пользователей"""
    db = SessionLocal()

    try:
        users = db.query(User).order_by(User.created_at).all()

        print(f"\n📊 Всего пользователей в БД: {len(users)}\n")
        print("=" * 60)

        if not users:
            print("⚠️  База данных пустая.")
            print("   Зарегистрируйте пользователя через POST /api/auth/signup\n")
            return

        for user in users:
            print(f"ID: {user.id}")
            print(f"Username: {user.username}")
            print(f"Email: {user.email or '-'}")
            print(f"Телефон: {user.phone or '-'}")
            print(f"Креатор: {'да' if user.is_creator else 'нет'}")
            print(f"Активный сброс пароля: {'да' if user.reset_password_token_hash or user.reset_pin_hash else 'нет'}")
            print(f"Создан: {user.created_at}")
            print("-" * 60)

    finally:
        db.close()


def reset_db():
    """Сброс базы данных (удалить все таблицы и создать заново)"""
    print("⚠️  ВНИМАНИЕ: Это удалит все данные из БД!")
    confirm = input("Продолжить? (yes/no): ")

    if confirm.lower() != "yes":
        print("❌ Отменено")
        return

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("✅ База данных сброшена\n")


def seed_db():
    """Заполнить БД тестовыми пользователями"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    test_users = [
        {"username": "reader1", "email": "reader1@test.com", "password": "password123"},
        {"username": "reader2", "phone": "+1 (555) 010-0002", "password": "password123"},
        {"username": "creator", "email": "creator@test.com", "password": "creator12345", "is_creator": True},
    ]

    try:
        for user_data in test_users:
            try:
                UserRepository.create_user(
                    db,
                    username=user_data["username"],
                    password_hash=hash_password(user_data["password"]),
                    email=user_data.get("email"),
                    phone=user_data.get("phone"),
                    is_creator=user_data.get("is_creator", False),
                )
            except ConflictError:
                print(f"⚠️  Пользователь {user_data['username']} уже существует")
                continue
            print(f"✅ Создан пользователь: {user_data['username']}")
    finally:
        db.close()

    print(f"\n✅ Тестовые данные добавлены\n")


def create_tables():
    """Создать таблицы в БД (если их нет)"""
    Base.metadata.create_all(bind=engine)
    print("✅ Таблицы созданы\n")


def cleanup_creators():
    """Очистить данные креаторов, отключивших CreatorHub дольше срока хранения"""
    db = SessionLocal()
    try:
        cleaned = AuthService.cleanup_expired_creator_data(db)
    finally:
        db.close()
    print(f"✅ Очищено профилей креаторов: {cleaned}\n")


def main():
    """Главная функция - обработка команд"""
    parser = argparse.ArgumentParser(
        description="Управление проектом ComicStop API"
    )

    parser.add_argument(
        "command",
        choices=["check-db", "reset-db", "seed-db", "create-tables", "cleanup-creators"],
        help="Команда для выполнения"
    )

    args = parser.parse_args()

    # Выполнение команды
    commands = {
        "check-db": check_db,
        "reset-db": reset_db,
        "seed-db": seed_db,
        "create-tables": create_tables,
        "cleanup-creators": cleanup_creators,
    }

    commands[args.command]()


if __name__ == "__main__":
    main()
