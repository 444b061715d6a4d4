from datetime import datetime
from typing import Any, Dict, List
from starred_exporter.domain.models import ApiErrorPayload, RepositoryRecord

# Wire fields promoted to first-class attributes on RepositoryRecord.
RECORD_FIELDS = (
    'id', 'name', 'full_name', 'html_url', 'description', 'stargazers_count',
    'forks_count', 'topics', 'language', 'created_at', 'updated_at',
)

class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST JSON payloads into domain models.
    """

    @staticmethod
    def _parse_timestamp(raw_node: Dict[str, Any], key: str) -> datetime:
        raw_date = raw_node.get(key)
        if not isinstance(raw_date, str) or not raw_date:
            raise ValueError(f"{key} is required to build RepositoryRecord.")
        return datetime.fromisoformat(raw_date.replace("Z", "+00:00"))

    @staticmethod
    def to_domain(raw_node: Dict[str, Any]) -> RepositoryRecord:
        """
        Transforms one element of the starred listing into a RepositoryRecord.

        Args:
            raw_node (Dict[str, Any]): A repository object from GitHub's REST response.

        Returns:
            RepositoryRecord: The domain model instance representing the repository.

        Raises:
            ValueError: If the node is not an object or misses a required field.
        """
        if not isinstance(raw_node, dict):
            raise ValueError(f"Expected a repository object, got {type(raw_node).__name__}.")

        # GitHub sends null for unset description/language/topics
        return RepositoryRecord(
            id=raw_node.get('id') or 0,
            name=raw_node.get('name'),
            full_name=raw_node.get('full_name'),
            html_url=raw_node.get('html_url'),
            description=raw_node.get('description') or '',
            stargazers_count=raw_node.get('stargazers_count') or 0,
            forks_count=raw_node.get('forks_count') or 0,
            topics=raw_node.get('topics') or (),
            language=raw_node.get('language') or '',
            created_at=GitHubTranslator._parse_timestamp(raw_node, 'created_at'),
            updated_at=GitHubTranslator._parse_timestamp(raw_node, 'updated_at'),
            metadata={k: v for k, v in raw_node.items() if k not in RECORD_FIELDS},
        )

    @staticmethod
    def to_page(raw_page: Any) -> List[RepositoryRecord]:
        """Translates a whole page, preserving the order GitHub returned."""
        if not isinstance(raw_page, list):
            raise ValueError(f"Expected a list of repositories, got {type(raw_page).__name__}.")
        return [GitHubTranslator.to_domain(node) for node in raw_page]

    @staticmethod
    def to_error(raw_body: Any) -> ApiErrorPayload:
        if not isinstance(raw_body, dict):
            raise ValueError(f"Expected an error object, got {type(raw_body).__name__}.")
        return ApiErrorPayload.model_validate(raw_body)
