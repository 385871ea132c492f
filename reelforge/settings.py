"""
Settings management for ReelForge.

This module provides simple accessor functions for configuration values.
All configuration is stored in YAML files (default.yaml, config.yaml); a few
deployment variables (PORT, APP_ENV, CORS_ORIGINS, SUPABASE_*) are read from
the environment first.
"""

import logging
import os
from typing import Dict, Any, Optional, List

from .config import ConfigLoader

logger = logging.getLogger(__name__)

# Single source of configuration
_config_loader = ConfigLoader()


# ============================================================================
# Section Accessors
# ============================================================================

def get_app_config() -> Dict[str, Any]:
    """Get application settings"""
    return _config_loader.get_section('app') or {}


def get_api_config() -> Dict[str, Any]:
    """Get HTTP API settings"""
    return _config_loader.get_section('api') or {}


def get_fetch_config() -> Dict[str, Any]:
    """Get asset fetch settings"""
    return _config_loader.get_section('fetch') or {}


def get_composition_config() -> Dict[str, Any]:
    """Get video composition settings"""
    return _config_loader.get_section('composition') or {}


def get_subtitles_config() -> Dict[str, Any]:
    """Get subtitle generation settings"""
    return _config_loader.get_section('subtitles') or {}


# ============================================================================
# App Settings
# ============================================================================

def get_environment() -> str:
    """
    Get deployment environment name.

    APP_ENV wins over NODE_ENV, which wins over the config file.
    """
    for env_key in ('APP_ENV', 'NODE_ENV'):
        value = os.getenv(env_key)
        if value:
            return value.strip().lower()
    return str(get_app_config().get('environment', 'development')).lower()


def is_production() -> bool:
    """True when internal error details must be hidden and failed workspaces deleted."""
    return get_environment() == 'production'


def get_log_file() -> Optional[str]:
    """Get log file path (None disables file logging)"""
    return get_app_config().get('log_file')


# ============================================================================
# API Settings
# ============================================================================

def get_api_host() -> str:
    return get_api_config().get('host', '0.0.0.0')


def get_api_port() -> int:
    """Get HTTP port; PORT environment variable takes precedence."""
    env_port = os.getenv('PORT')
    if env_port:
        return int(env_port)
    return int(get_api_config().get('port', 3000))


def get_cors_origins() -> List[str]:
    """Get allowed CORS origins. Empty list means reflect any origin."""
    env_origins = os.getenv('CORS_ORIGINS')
    if env_origins is not None:
        return [o.strip() for o in env_origins.split(',') if o.strip()]
    origins = get_api_config().get('cors_origins') or []
    return [str(o).strip() for o in origins if str(o).strip()]


def get_cors_credentials() -> bool:
    env_value = os.getenv('CORS_CREDENTIALS')
    if env_value is not None:
        return env_value.lower() == 'true'
    return bool(get_api_config().get('cors_credentials', False))


def get_invalid_json_snippet_chars() -> int:
    return int(get_api_config().get('invalid_json_snippet_chars', 2000))


# ============================================================================
# Workspace & Processing Settings
# ============================================================================

def get_workspace_root() -> str:
    """Get root directory under which per-job workspaces are created"""
    return _config_loader.get('workspace.root', default='temp')


def get_max_concurrency() -> int:
    """
    Get size of the process-wide execution pool.

    Returns:
        int: Configured value, or CPU count minus one (minimum 1)
    """
    configured = _config_loader.get('processing', 'max_concurrency')
    if configured is not None:
        return max(1, int(configured))

    cpu_count = os.cpu_count() or 1
    return max(1, cpu_count - 1)


# ============================================================================
# Fetch Settings
# ============================================================================

def get_fetch_retries() -> int:
    return int(get_fetch_config().get('retries', 2))


def get_fetch_retry_delay() -> float:
    """Base delay in seconds for linear retry backoff"""
    return float(get_fetch_config().get('retry_delay_seconds', 0.5))


def get_fetch_timeout() -> float:
    return float(get_fetch_config().get('timeout_seconds', 60))


def get_fetch_user_agent() -> str:
    return get_fetch_config().get('user_agent', 'curl/8.7.1')


def get_default_image_extension() -> str:
    return get_fetch_config().get('default_extension', '.png')


# ============================================================================
# Composition Settings
# ============================================================================

def get_default_resolution() -> str:
    return get_composition_config().get('default_resolution', '1280x720')


def get_frame_rate() -> int:
    return int(get_composition_config().get('fps', 24))


def get_video_encoder() -> str:
    return get_composition_config().get('encoder', 'libx264')


def get_encoder_preset() -> str:
    return get_composition_config().get('preset', 'ultrafast')


def get_encoder_tune() -> Optional[str]:
    return get_composition_config().get('tune', 'stillimage')


def get_pixel_format() -> str:
    return get_composition_config().get('pix_fmt', 'yuv420p')


def get_segment_timeout_seconds() -> float:
    """Get wall-clock budget for one fallback segment render (minimum 1, default 60)"""
    config_timeout = get_composition_config().get('segment_timeout_seconds', 60)
    try:
        timeout_value = float(config_timeout)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid segment timeout value '%s' in configuration. "
            "Falling back to default 60 seconds.",
            config_timeout,
        )
        return 60.0

    if timeout_value < 1:
        logger.warning(
            "Configured segment timeout (%s) is less than 1 second. "
            "Clamping to minimum value of 1.",
            timeout_value,
        )
        return 1.0

    return timeout_value


def get_ffmpeg_path() -> str:
    return os.getenv('FFMPEG_PATH') or get_composition_config().get('ffmpeg_path', 'ffmpeg')


def get_ffprobe_path() -> str:
    return os.getenv('FFPROBE_PATH') or get_composition_config().get('ffprobe_path', 'ffprobe')


def get_ffprobe_timeout_seconds() -> float:
    return float(get_composition_config().get('ffprobe_timeout_seconds', 30))


# ============================================================================
# Subtitle Settings
# ============================================================================

def get_subtitle_words_per_cue() -> int:
    return max(1, int(get_subtitles_config().get('words_per_cue', 4)))


def get_subtitle_presets() -> Dict[str, str]:
    """Get named subtitle style presets (lowercase name -> ASS force_style)"""
    presets = get_subtitles_config().get('presets') or {}
    return {str(name).lower(): style for name, style in presets.items()}


# ============================================================================
# Storage Configuration Accessors
# ============================================================================

def get_storage_backend() -> str:
    """Get storage backend type."""
    return (os.getenv('STORAGE_BACKEND') or _config_loader.get('storage.backend', default='supabase')).lower()


def get_storage_content_type() -> str:
    return _config_loader.get('storage.content_type', default='video/mp4')


def get_storage_local_path() -> str:
    """Get local storage base path."""
    return _config_loader.get('storage.local.base_path', default='output')


def get_storage_supabase_url() -> Optional[str]:
    return os.getenv('SUPABASE_URL') or _config_loader.get('storage.supabase.url')


def get_storage_supabase_key() -> Optional[str]:
    """Service-role key preferred, anon key accepted as fallback."""
    return (
        os.getenv('SUPABASE_SERVICE_ROLE_KEY')
        or os.getenv('SUPABASE_ANON_KEY')
        or _config_loader.get('storage.supabase.key')
    )


def get_storage_supabase_key_type() -> str:
    return 'service-role' if os.getenv('SUPABASE_SERVICE_ROLE_KEY') else 'anon'


def get_storage_supabase_bucket() -> str:
    return os.getenv('SUPABASE_BUCKET_NAME') or _config_loader.get('storage.supabase.bucket', default='videos')


def get_storage_supabase_timeout() -> float:
    return float(_config_loader.get('storage.supabase.timeout_seconds', default=120))


def get_storage_gcs_bucket() -> Optional[str]:
    """Get GCS bucket name."""
    return _config_loader.get('storage.gcs.bucket_name')


def get_storage_gcs_credentials() -> Optional[str]:
    """Get GCS credentials path."""
    return _config_loader.get('storage.gcs.credentials_path')


def get_storage_s3_bucket() -> Optional[str]:
    return _config_loader.get('storage.s3.bucket')


def get_storage_s3_region() -> str:
    return _config_loader.get('storage.s3.region', default='us-east-1')
