# GradeSave - Notenverwaltung
# Copyright (C) 2026 (linuxdev)
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import os
from sqlalchemy.orm import sessionmaker
from config import config_path, load_settings, write_default_config
from database import Base, make_engine
from models import Role
from crud_ops import create_user, get_user_by_username


def setup_database(settings):
    """Create the schema and the configured admin account"""
    engine = make_engine(settings.database_url)
    Base.metadata.create_all(engine)
    print(f"Schema ready at {settings.database_url}")

    db = sessionmaker(autoflush=False, bind=engine)()
    try:
        if get_user_by_username(db, settings.admin_username):
            print(f"Admin account '{settings.admin_username}' found, leaving it unchanged.")
        else:
            create_user(db, settings.admin_username, settings.admin_password, Role.ADMIN, "Admin", "Admin")
            print(f"Admin account '{settings.admin_username}' created.")
    except Exception as e:
        db.rollback()
        print(f"Could not prepare the GradeSave database: {e}")
        raise
    finally:
        db.close()


def main():
    path = config_path()
    if not os.path.exists(path):
        write_default_config(path)
        print(f"Wrote default configuration to {path}.")

    settings = load_settings(path)
    setup_database(settings)
    os.makedirs(settings.pdf_output_dir, exist_ok=True)
    print(f"Credential PDFs go to {settings.pdf_output_dir}.")


if __name__ == "__main__":
    main()
