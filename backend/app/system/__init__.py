from .dependency_check import check_pipeline_dependencies

__all__ = ["check_pipeline_dependencies"]
