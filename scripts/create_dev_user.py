"""Create a dev-only user and print an access token for it.

Optionally seeds a catalog workout so schedules can be created right away:

    python scripts/create_dev_user.py --email dev@example.com --with-workout
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from sqlalchemy import select

from app.core.auth_jwt import create_access_token
from app.db.models import Base, User
from app.db.session import get_engine, get_session
from app.schedules.models import WorkoutSchedule  # noqa: F401  registers tables on Base.metadata
from app.workouts.models import Difficulty, Workout

DEFAULT_EMAIL = "dev_user@example.com"


def create_dev_user(email: str, name: str | None = None, with_workout: bool = False) -> str:
    """Create (or reuse) a dev user.

    Args:
        email: User email address
        name: Display name
        with_workout: Also create a sample catalog workout

    Returns:
        user_id
    """
    Base.metadata.create_all(bind=get_engine())

    with get_session() as db:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user is not None:
            print(f"✅ User already exists: user_id={user.id}, email={email}")
        else:
            user = User(email=email, name=name, is_active=True)
            db.add(user)
            db.flush()
            print(f"✅ Created dev user: user_id={user.id}, email={email}")
        user_id = user.id

        if with_workout:
            workout = Workout(
                title="Full Body Strength",
                description="Compound lifts with short rest",
                difficulty=Difficulty.MEDIUM.value,
                duration=45,
                calories_burn=350,
                target_muscles=["legs", "back", "chest"],
                equipment=["barbell", "dumbbells"],
            )
            db.add(workout)
            db.flush()
            print(f"✅ Created sample workout: workout_id={workout.id}")

    return user_id


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a dev user and print an access token")
    parser.add_argument(
        "--email",
        type=str,
        default=DEFAULT_EMAIL,
        help=f"User email address (default: {DEFAULT_EMAIL})",
    )
    parser.add_argument("--name", type=str, default=None, help="Display name")
    parser.add_argument(
        "--with-workout",
        action="store_true",
        help="Also create a sample catalog workout",
    )
    args = parser.parse_args()

    try:
        user_id = create_dev_user(email=args.email, name=args.name, with_workout=args.with_workout)
        print(f"\nAccess token:\n{create_access_token(user_id)}")
    except Exception as e:
        print(f"❌ Error creating dev user: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)
