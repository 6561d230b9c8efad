import importlib

from fastapi import APIRouter

from utils.router import include_router

router = APIRouter()

mounted_modules = include_router(importlib.import_module(__name__), router)
