"""
Create (or reset) a staff login and seed the default question bank.

Usage: python scripts/create_staff_user.py <email> <password> [admin|staff]
"""
import sys
from werkzeug.security import generate_password_hash

from growth_iq.app import create_app
from growth_iq.models import db, User, ROLE_ADMIN, ROLE_STAFF
from growth_iq.services.question_bank import QuestionBankService


def main(argv):
    if len(argv) < 3:
        print(__doc__)
        return 1
    email, password = argv[1].strip().lower(), argv[2]
    role = argv[3] if len(argv) > 3 else ROLE_ADMIN
    if role not in (ROLE_ADMIN, ROLE_STAFF):
        print(f"Unknown role '{role}'")
        return 1

    app = create_app()
    with app.app_context():
        user = User.query.filter_by(email=email).first()
        if user:
            print(f"User {email} already exists. Updating...")
            user.password_hash = generate_password_hash(password)
            user.role = role
        else:
            print(f"Creating new {role} user: {email}")
            user = User(name=email.split('@')[0], email=email,
                        password_hash=generate_password_hash(password), role=role)
            db.session.add(user)
        db.session.commit()

        added = QuestionBankService.seed_default_questions()
        print(f"Question bank: {added} default questions added.")
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
