import importlib
import pkgutil


def include_routers(app, package_name, package_path):
    # 패키지 내 모든 모듈 중 router 속성이 있는 것만 등록
    for _, module_name, _ in pkgutil.iter_modules(package_path):
        module = importlib.import_module(f"expense_tracker.{package_name}.{module_name}")
        if hasattr(module, "router"):
            app.include_router(module.router)
