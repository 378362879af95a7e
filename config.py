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
import json
from functools import lru_cache
from pydantic import BaseModel


DEFAULT_CONFIG_PATH = "config.json"


class Settings(BaseModel):
    database_url: str = "sqlite:///gradesave.db"
    secret_key: str = "change-me"
    pdf_output_dir: str = "pdfs"
    admin_username: str = "admin"
    admin_password: str = "admin"
    # localhost, 10.x and 192.168.x on any port
    cors_origin_regex: str = r"http://(localhost|10\.\d+\.\d+\.\d+|192\.168\.\d+\.\d+)(:\d+)?"
    password_length: int = 20
    max_username_attempts: int = 10
    log_level: str = "INFO"


def config_path() -> str:
    return os.environ.get("GRADESAVE_CONFIG", DEFAULT_CONFIG_PATH)


def load_settings(path: str = None) -> Settings:
    """Read config.json (if present) and apply environment overrides."""
    path = path or config_path()
    data = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

    env_overrides = {
        "DATABASE_URL": "database_url",
        "SECRET_KEY": "secret_key",
        "PDF_OUTPUT_DIR": "pdf_output_dir",
    }
    for env_name, key in env_overrides.items():
        if os.environ.get(env_name):
            data[key] = os.environ[env_name]

    return Settings(**data)


def write_default_config(path: str = None) -> Settings:
    path = path or config_path()
    settings = Settings()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.model_dump(), f, ensure_ascii=False, indent=4)
    return settings


@lru_cache
def get_settings() -> Settings:
    return load_settings()
