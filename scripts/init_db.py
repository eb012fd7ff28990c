#!/usr/bin/env python3
"""Create the weather cache tables. Idempotent."""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from app.extensions import db
from app.models.weather import WeatherCache


def main():
    app = create_app()
    with app.app_context():
        db.create_all()
        count = WeatherCache.query.count()
        print(f"weather_cache ready ({count} rows)")


if __name__ == '__main__':
    main()
