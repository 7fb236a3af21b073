"""Serve the admin panel"""

import logging
import wsgiref.simple_server

from .. import config
from . import app


def start():
    """serve the entity forms on the configured host and port until interrupted"""
    host, port = config.web.host, config.web.port
    with wsgiref.simple_server.make_server(host, port, app.app) as server:
        logging.info(f'serving forms of {len(app.config_manager.entity_names)} '
                     f'entities on http://{host}:{server.server_port}/')
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logging.info('admin panel stopped')
