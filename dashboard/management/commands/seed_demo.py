from django.contrib.auth.models import Group, User
from django.core.management.base import BaseCommand
from django.db import transaction

from dashboard.models import ROLE_ADMIN, ROLE_BUYER, ROLE_CONTRIBUTOR, ROLE_VERIFIER, UserProfile

DEMO_USERS = [
    {'username': 'admin', 'name': 'Admin User', 'email': 'admin@bluecarbon.com',
     'password': 'admin123', 'role': ROLE_ADMIN, 'location': None},
    {'username': 'verifier1', 'name': 'Verifier One', 'email': 'verifier1@bluecarbon.com',
     'password': 'verifier123', 'role': ROLE_VERIFIER, 'location': None},
    {'username': 'alice', 'name': 'Alice Johnson', 'email': 'alice@bluecarbon.com',
     'password': 'password123', 'role': ROLE_CONTRIBUTOR, 'location': 'California, USA'},
    {'username': 'bob', 'name': 'Bob Smith', 'email': 'bob@bluecarbon.com',
     'password': 'password123', 'role': ROLE_BUYER, 'location': 'New York, USA'},
]


class Command(BaseCommand):
    help = "Create the demo accounts (one per role). Existing usernames are left untouched."

    def handle(self, *args, **options):
        self.stdout.write("Seeding database with demo data...")

        with transaction.atomic():
            for data in DEMO_USERS:
                if User.objects.filter(username=data['username']).exists():
                    self.stdout.write(f"Skipped existing user: {data['email']}")
                    continue

                user = User.objects.create_user(
                    username=data['username'],
                    email=data['email'],
                    password=data['password'],
                    is_staff=data['role'] == ROLE_ADMIN,
                )
                UserProfile.objects.create(user=user, name=data['name'], location=data['location'])
                group, _ = Group.objects.get_or_create(name=data['role'])
                user.groups.add(group)
                self.stdout.write(f"Created user: {data['email']} ({data['role']})")

        self.stdout.write(self.style.SUCCESS("Database seeding completed successfully!"))
