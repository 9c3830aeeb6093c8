# Overview: Shared Flask extensions; `db` owns the pooled engine used by every request.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate(compare_type=True)
