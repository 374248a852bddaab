#!/usr/bin/env python
"""Drop and recreate every table (development only)"""
import logging
from insekta.database import engine, Base
from insekta.models import User, Feature, FeatureAssignment, Banner, Chart, TeamMember  # noqa: F401

logger = logging.getLogger("insekta.reset_db")


def reset_database():
    logger.info("dropping existing tables...")
    Base.metadata.drop_all(bind=engine)

    logger.info("creating tables...")
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    reset_database()
    logger.info("database reset; the default admin is recreated on the next server start")
