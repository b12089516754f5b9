# Overview: Flask extension instances for database, migrations, and the rollup queue.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .tasks import RollupQueue

db = SQLAlchemy()
migrate = Migrate()
rollup_queue = RollupQueue()
