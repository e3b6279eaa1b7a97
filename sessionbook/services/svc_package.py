from typing import Optional
from sessionbook.configuration.database import CosmosStore
from sessionbook.configuration.monitor import log_event, log_exception, start_span
from sessionbook.models.mod_package import Package
from sessionbook.validators.val_errors import ValidationError

class PackageService:
    @staticmethod
    def get_package(db: CosmosStore, package_id: str) -> Optional[Package]:
        query = 'SELECT * FROM c WHERE c.id = @id'
        items = list(db.packages.query_items(
            query=query,
            parameters=[{"name": "@id", "value": package_id}],
            enable_cross_partition_query=True,
        ))
        return Package(**items[0]) if items else None

    @staticmethod
    def get_active_package(db: CosmosStore, package_id: str) -> Package:
        """Package lookup used at booking time; missing and inactive packages are rejected alike"""
        try:
            with start_span("get_active_package", attributes={"package_id": package_id}):
                package = PackageService.get_package(db, package_id)
                if package is None or not package.is_active:
                    log_event("Package unavailable", {"package_id": package_id})
                    raise ValidationError(
                        "package_unavailable",
                        "Package not found or not available for booking",
                        package_id=package_id,
                    )
                return package
        except ValidationError:
            raise
        except Exception as e:
            log_exception(e, {"operation": "get_active_package", "package_id": package_id})
            raise
