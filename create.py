# create.py: bootstrap an organization and its first admin
from getpass import getpass
from tasktrack import create_app
from tasktrack.extensions import db
from tasktrack.models.organization import Organization
from tasktrack.models.user import User


def main():
    app = create_app()
    with app.app_context():
        db.create_all()

        org_name = input("Organization name: ").strip()
        first_name = input("Admin first name: ").strip()
        last_name = input("Admin last name: ").strip()
        email = input("Admin email: ").strip().lower()
        password = getpass("Password: ")

        # Check existing
        if User.query.filter_by(email=email).first():
            print("User with that email already exists.")
            return

        org = Organization.query.filter_by(name=org_name).first()
        if org is None:
            org = Organization(name=org_name)
            db.session.add(org)
            db.session.flush()  # get org.id / slug

        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            role="admin",
            status="active",
            organization_id=org.id,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        print(f"Admin {email} created for {org.name} (registration slug: {org.slug}).")

if __name__ == "__main__":
    main()
