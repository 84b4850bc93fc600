"""
Configuration management for the Form Schema Extractor application.
Loads the model credential and settings from environment variables.
"""
import os
from typing import Optional, Dict, Any
from dotenv import load_dotenv

from app.services.form_schema_pipeline.errors import ConfigurationError

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """Configuration class for the model credential and pipeline settings."""

    # Model Credentials
    OPENAI_API_KEY: Optional[str] = os.getenv('OPENAI_API_KEY')
    OPENAI_BASE_URL: str = os.getenv('OPENAI_BASE_URL', 'https://api.openai.com/v1')
    OPENAI_MODEL: str = os.getenv('OPENAI_MODEL', 'gpt-4o')

    # Model Call Settings
    MODEL_MAX_TOKENS: int = int(os.getenv('MODEL_MAX_TOKENS', '4096'))
    MODEL_TEMPERATURE: float = float(os.getenv('MODEL_TEMPERATURE', '0.1'))
    MODEL_TIMEOUT: int = int(os.getenv('MODEL_TIMEOUT', '120'))
    IMAGE_DETAIL: str = os.getenv('IMAGE_DETAIL', 'high')

    # Batching
    MAX_PAGES_PER_BATCH: int = int(os.getenv('MAX_PAGES_PER_BATCH', '3'))
    # 1 = strictly sequential batch calls
    MAX_CONCURRENT_BATCHES: int = int(os.getenv('MAX_CONCURRENT_BATCHES', '1'))

    # Uploads and Page Rendering
    MAX_FILE_SIZE: int = int(os.getenv('MAX_FILE_SIZE', str(10 * 1024 * 1024)))
    PDF_DPI: int = int(os.getenv('PDF_DPI', '150'))
    MAX_IMAGE_DIMENSION: int = int(os.getenv('MAX_IMAGE_DIMENSION', '2000'))

    # Training Dataset Store
    TRAINING_DB_PATH: str = os.getenv('TRAINING_DB_PATH', 'data/training.db')
    FINE_TUNE_MIN_EXAMPLES: int = int(os.getenv('FINE_TUNE_MIN_EXAMPLES', '10'))

    # API Settings
    API_HOST: str = os.getenv('API_HOST', '0.0.0.0')
    API_PORT: int = int(os.getenv('API_PORT', '8000'))
    CORS_ORIGINS: list = os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')
    EXPOSE_ERROR_DETAILS: bool = os.getenv('EXPOSE_ERROR_DETAILS', 'false').lower() == 'true'

    @classmethod
    def validate(cls) -> bool:
        """
        Validate that required configuration is present.
        """
        if not cls.OPENAI_API_KEY:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        if cls.MAX_PAGES_PER_BATCH < 1:
            raise ConfigurationError("MAX_PAGES_PER_BATCH must be a positive integer")

        if cls.MAX_CONCURRENT_BATCHES < 1:
            raise ConfigurationError("MAX_CONCURRENT_BATCHES must be a positive integer")
        return True

    @classmethod
    def get_model_settings(cls) -> Dict[str, Any]:
        """
        Get keyword arguments for the vision model client.
        """
        return {
            'api_key': cls.OPENAI_API_KEY,
            'base_url': cls.OPENAI_BASE_URL,
            'model': cls.OPENAI_MODEL,
            'max_tokens': cls.MODEL_MAX_TOKENS,
            'temperature': cls.MODEL_TEMPERATURE,
            'timeout': cls.MODEL_TIMEOUT,
            'image_detail': cls.IMAGE_DETAIL,
        }

    @classmethod
    def get_component_ids(cls) -> Dict[str, str]:
        """
        Get the external component id for each configured component kind.

        Keys are canonical component names ('Short Input'); values come from
        COMPONENT_ID_<KIND> variables, e.g. COMPONENT_ID_SHORT_INPUT.
        Kinds without a configured id are omitted.
        """
        from app.services.form_schema_pipeline.ontology import ComponentKind

        component_ids = {}
        for kind in ComponentKind:
            env_name = 'COMPONENT_ID_' + kind.value.upper().replace('-', '_').replace(' ', '_')
            value = os.getenv(env_name)
            if value:
                component_ids[kind.value] = value
        return component_ids
