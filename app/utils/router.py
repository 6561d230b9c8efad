import importlib
from pkgutil import iter_modules
from types import ModuleType

from fastapi import APIRouter


def include_router(package: ModuleType, parent_router: APIRouter) -> list[str]:
    """
    挂载 package 下所有暴露 ``router`` 的模块 (含子包), 按模块名排序.

    以下划线开头的模块不参与挂载. 返回已挂载的模块全名.
    """
    mounted: list[str] = []
    for module_info in sorted(iter_modules(package.__path__), key=lambda info: info.name):
        if module_info.name.startswith("_"):
            continue

        module = importlib.import_module(f"{package.__name__}.{module_info.name}")
        router = getattr(module, "router", None)
        if isinstance(router, APIRouter):
            parent_router.include_router(router)
            mounted.append(module.__name__)

        if module_info.ispkg:
            mounted.extend(include_router(module, parent_router))
    return mounted
