"""
Environment-based configuration for the DataPoint API resolvers.

All values are read once when the pipelines are built; the names match the
environment variables set on the resolver Lambda.
"""

from dataclasses import dataclass

from .dynamodb import get_required_env


@dataclass(frozen=True)
class ApiConfig:
    """Names of the collaborators the pipelines are bound to and the key sealing page tokens."""

    data_points_table_name: str
    authorizer_function_name: str
    list_data_points_function_name: str
    page_token_key_id: str

    @classmethod
    def from_env(cls) -> "ApiConfig":
        """
        Load configuration from the environment.

        Raises:
            ValueError: If a required variable is not set
        """
        return cls(
            data_points_table_name=get_required_env("DATA_POINTS_TABLE_NAME"),
            authorizer_function_name=get_required_env("AUTHORIZER_FUNCTION_NAME"),
            list_data_points_function_name=get_required_env("LIST_DATA_POINTS_FUNCTION_NAME"),
            page_token_key_id=get_required_env("PAGE_TOKEN_KEY_ID"),
        )
