"""Seed database with demo organizations and employees."""
from tenders.database import SessionLocal, init_db
from tenders.models import Organization, OrganizationMember, OrganizationType, User
import uuid

def seed():
    """Seed database with demo data."""
    init_db()
    db = SessionLocal()

    try:
        organizations_data = [
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000001'),
                'name': 'Стройресурс',
                'description': 'Генеральный подрядчик',
                'type': OrganizationType.LLC.value,
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000002'),
                'name': 'Быстрая доставка',
                'description': 'Логистика по региону',
                'type': OrganizationType.IE.value,
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000003'),
                'name': 'Металлозавод',
                'description': 'Производство металлоконструкций',
                'type': OrganizationType.JSC.value,
            },
        ]
        for org_data in organizations_data:
            db.add(Organization(**org_data))
        db.flush()

        # (username, first name, last name, organization index or None)
        users_data = [
            ('user1', 'Иван', 'Иванов', 0),
            ('user2', 'Пётр', 'Петров', 0),
            ('user3', 'Сергей', 'Сидоров', 0),
            ('user4', 'Анна', 'Смирнова', 1),
            ('user5', 'Мария', 'Кузнецова', 2),
            ('user6', 'Олег', 'Попов', 2),
            ('freelancer', 'Алексей', 'Васильев', None),
        ]

        for index, (username, first_name, last_name, org_index) in enumerate(users_data, start=1):
            user = User(
                id=uuid.UUID(f'00000000-0000-0000-0000-{100 + index:012d}'),
                username=username,
                first_name=first_name,
                last_name=last_name,
            )
            db.add(user)
            db.flush()
            if org_index is not None:
                db.add(OrganizationMember(
                    organization_id=organizations_data[org_index]['id'],
                    user_id=user.id,
                ))

        db.commit()
        print("✅ Database seeded successfully!")
        print("\nDemo users:")
        for username, _first, _last, org_index in users_data:
            org_name = organizations_data[org_index]['name'] if org_index is not None else '-'
            print(f"  {username} ({org_name})")

    except Exception as e:
        print(f"❌ Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
