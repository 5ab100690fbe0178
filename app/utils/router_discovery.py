import importlib
import pkgutil

from fastapi import APIRouter, FastAPI
from loguru import logger


def discover_routers(package_name: str = "app.api") -> list[APIRouter]:
    """Collect the module-level ``router`` of every module in ``package_name``.

    Modules are visited in name order so the OpenAPI document is stable between runs.
    Helper modules without a router (``deps``) are skipped.
    """
    package = importlib.import_module(package_name)
    routers: list[APIRouter] = []

    module_names = sorted(
        name for _, name, is_pkg in pkgutil.iter_modules(package.__path__) if not is_pkg
    )
    for module_name in module_names:
        module = importlib.import_module(f"{package_name}.{module_name}")
        router = getattr(module, "router", None)
        if not isinstance(router, APIRouter):
            continue

        routers.append(router)
        logger.debug(f"Discovered router {router.prefix or '/'} in {module.__name__}")

    return routers


def register_routers(app: FastAPI, prefix: str = "/api") -> None:
    routers = discover_routers()
    for router in routers:
        app.include_router(router, prefix=prefix)
    logger.info(f"Registered {len(routers)} routers under {prefix}")
