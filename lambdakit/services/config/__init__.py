"""Configuration package (Facade).

Re-exports the public config types so callers import from a single path:

	from lambdakit.services.config import ProjectConfig, ToolSettings
"""

from lambdakit.services.config.project_config import (
	ProjectAnswers,
	ProjectConfig,
	is_existing_project,
	normalize_project_name,
	unique_project_name,
)
from lambdakit.services.config.settings import (
	DEFAULT_REGION,
	RESERVED_STAGE,
	SUPPORTED_REGIONS,
	ToolSettings,
)

__all__ = [
	"DEFAULT_REGION",
	"RESERVED_STAGE",
	"SUPPORTED_REGIONS",
	"ProjectAnswers",
	"ProjectConfig",
	"ToolSettings",
	"is_existing_project",
	"normalize_project_name",
	"unique_project_name",
]
