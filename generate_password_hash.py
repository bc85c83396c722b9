#!/usr/bin/env python3
"""
Password Hash Generator
Prints a bcrypt hash for an admin password, e.g. to set `password_hash`
by hand on a database that seed_admin.py cannot reach.
"""
import getpass

from ambient_frames.utils.auth import hash_password


def main():
    """Main function to generate password hash."""
    print("=" * 60)
    print("Admin Password Hash Generator")
    print("=" * 60)
    print()

    password = getpass.getpass("Enter admin password: ")

    if not password:
        print("\n❌ Error: Password cannot be empty")
        return

    password_confirm = getpass.getpass("Confirm password: ")

    if password != password_confirm:
        print("\n❌ Error: Passwords do not match")
        return

    print("\n⏳ Generating hash (this may take a moment)...")
    print(f"\n{hash_password(password)}\n")
    print("⚠️  Keep this hash secret and never commit it to version control!")


if __name__ == "__main__":
    main()
