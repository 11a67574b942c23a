from flask_apscheduler import APScheduler
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from skyweave.jobs.supervisor import TaskSupervisor

db = SQLAlchemy()
migrate = Migrate()
scheduler = APScheduler()
tasks = TaskSupervisor()
