"""
asset_services -- Orchestration over modules, engines and the repository.

Responsibility:
    The capability gate, the workflow executor, lifecycle commands, the
    lifecycle orchestrator, the valuation service and the repository
    implementations.  This is the only layer that holds a repository or a
    database session.

Architecture position:
    Services -- orchestration over engines + modules + kernel.

    Dependency direction:
        asset_services/ -> asset_modules/, asset_engines/, asset_kernel/  (allowed)
        asset_engines/  -> asset_services/                                (FORBIDDEN)
        asset_kernel/   -> asset_services/                                (FORBIDDEN)

    ``asset_modules`` services import ``rbac_authority`` and
    ``workflow_executor`` from here, so this package init stays free of
    imports; consumers import the submodules directly:

        from asset_services.lifecycle_orchestrator import LifecycleOrchestrator
        from asset_services.valuation_service import ValuationService
"""
