# heartline/common/management/commands/seed_demo.py
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from heartline.users.models import Profile

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    dict(
        email="emma@demo.heartline.app",
        name="Emma",
        age=25,
        profile=dict(
            bio="Love hiking and coffee",
            gender="female",
            location="Brooklyn",
            interests=["hiking", "coffee", "photography"],
            preferences={"gender": "male", "age_min": 23, "age_max": 35},
        ),
    ),
    dict(
        email="james@demo.heartline.app",
        name="James",
        age=28,
        profile=dict(
            bio="Musician and food lover",
            gender="male",
            location="Queens",
            interests=["music", "cooking"],
            preferences={"gender": "female", "age_min": 22, "age_max": 32},
        ),
    ),
    dict(
        email="sofia@demo.heartline.app",
        name="Sofia",
        age=24,
        profile=dict(
            bio="Artist and traveler",
            gender="female",
            location="Manhattan",
            interests=["art", "travel"],
            preferences={},
        ),
    ),
    dict(
        email="michael@demo.heartline.app",
        name="Michael",
        age=30,
        profile=dict(
            bio="Fitness enthusiast",
            gender="male",
            location="Jersey City",
            interests=["gym", "running", "cooking"],
            preferences={"age_min": 24, "age_max": 34},
        ),
    ),
    dict(
        email="olivia@demo.heartline.app",
        name="Olivia",
        age=27,
        profile=dict(
            bio="Bookworm and yoga instructor",
            gender="female",
            location="Hoboken",
            interests=["books", "yoga"],
            preferences={"gender": "male"},
        ),
    ),
]


class Command(BaseCommand):
    help = "Seed demo users (only when the user table is empty, unless --force)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--force",
            action="store_true",
            help="create missing demo users even if other users exist",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()

        existing = User.objects.count()
        if existing and not options["force"]:
            self.stdout.write(f"Found {existing} existing users, skipping")
            return

        created_count = 0
        for data in DEMO_USERS:
            data = dict(data)
            profile = data.pop("profile")
            if User.objects.filter(email=data["email"]).exists():
                continue

            user = User.objects.create_user(password=DEMO_PASSWORD, **data)
            Profile.objects.create(user=user, **profile)
            created_count += 1

        self.stdout.write(
            self.style.SUCCESS(f"Added {created_count} demo users (password: {DEMO_PASSWORD})")
        )
