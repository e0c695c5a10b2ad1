"""WSGI entrypoint for the Recipe Book application.

The recipe book keeps its state in one process and does not lock it, so
serve requests one at a time: run Gunicorn with a single sync worker
(``gunicorn -w 1 main:app``), and for local development use
``flask --app main run --without-threads``, which imports the ``app`` object
defined below.
"""

import logging

from app import create_app

logging.basicConfig(level=logging.INFO)

app = create_app()


__all__ = ["app"]
