from os import environ
from pathlib import Path
from functools import lru_cache
from importlib import import_module
from uuid import uuid4

from fastapi import FastAPI
from loguru import logger


def load_routes(app: FastAPI, modules: list[str]):
    """Include the `router` of every listed module, in order.

    Order matters: the `/live/*` catch-all must be registered last.
    """
    from app.cw.config import config
    disabled_routes = [x.strip() for x in config.get('API_DISABLED', '').split(',') if x.strip()]
    logger.debug('disabled routes: {}', disabled_routes)

    for name in modules:
        if any(name.endswith(f'.{disabled}') for disabled in disabled_routes):
            logger.warning('disabled route module {}', name)
            continue

        module = import_module(name)
        if hasattr(module, 'router'):
            app.include_router(module.router)
            logger.info('Added routes in {}', name)

    for route_info in get_all_routes_info(app):
        methods = ','.join(sorted(route_info['methods']))
        logger.info('Loaded route: {:<12} {:<60} {}', methods, route_info['path'], route_info['endpoint'])


def get_all_routes_info(app: FastAPI):
    routes_info = []

    for route in app.routes:
        if hasattr(route, 'methods'):
            endpoint_name = route.endpoint.__name__ if hasattr(route.endpoint, '__name__') else str(route.endpoint)
            routes_info.append(
                {
                    "methods": sorted(route.methods),
                    "path": route.path,
                    "name": route.name,
                    "endpoint": endpoint_name,
                }
            )

    return routes_info


@lru_cache
def get_worker_info():
    project_root = Path(__file__).parent.parent.parent.parent
    worker_name = environ.get('WORKER_NAME', project_root.name)

    parts = environ.get('BUILD_COMMIT', '').split('-')
    commit_id = parts[1] if len(parts) > 1 else 'dev'

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import sys
    import logging
    from app.cw.config import config

    # asyncpg and httpx are chatty at INFO
    for name in ('asyncpg', 'httpx', 'httpcore'):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if config.get_bool('DEBUG'):
        logger_level = 'DEBUG'
        logger_format = (
            f'<yellow>{worker_name}:{commit_id}</yellow> | '
            '<green>{time:MM-DD HH:mm:ss.SSS}</green> | '
            '<level>{level: <8}</level> | '
            '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
            '<level>{message}</level>'
        )
    else:
        logger_level = 'INFO'
        logger_format = (
            f'{worker_name}:{commit_id} | '
            '{time:MM-DD HH:mm:ss.SSS} | '
            '{level: <8} | '
            '{name}:{function}:{line} | '
            '{message}'
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)
