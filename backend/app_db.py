# app_db.py — FastAPI app backed by SQLite/SQLAlchemy
import config
from api import create_app
from crud import DbStore
from database import SessionLocal, init_db

config.configure_logging()

# Tables and the system user must exist before the reset service reads report history
init_db()
app = create_app(DbStore(SessionLocal), title="Housekeeping Management System API (DB)")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app_db:app", host=config.HOST, port=config.PORT, reload=config.DEBUG)
