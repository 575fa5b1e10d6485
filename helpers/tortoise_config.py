from contextlib import asynccontextmanager

from tortoise import Tortoise

from helpers.settings import Settings

TORTOISE_CONFIG = {
    "connections": {
        "default": Settings.from_env().database_url
    },
    "apps": {
        "models": {
            "models": [
                "models.installation",
                "aerich.models",
            ]
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}


@asynccontextmanager
async def lifespan(_):
    # schema comes from the Postgres aerich migrations; there is no local fallback
    if not TORTOISE_CONFIG["connections"]["default"]:
        raise RuntimeError("DATABASE_URL is not set. Point it at the Postgres database and run `aerich upgrade`.")
    await Tortoise.init(config=TORTOISE_CONFIG)
    yield
    await Tortoise.close_connections()
