# Celery instance is defined in fin_project/celery.py
# Importing it here makes sure the app is loaded when Django starts,
# so @shared_task functions bind to it
from .celery import celery_app

__all__ = ("celery_app",)

""" Start a worker with "celery -A fin_project worker -l info".
    -A fin_project imports this package and picks up celery_app. """
