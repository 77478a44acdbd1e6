from .analyzer import analyze_file
from .file_types import get_file_extension, get_file_type, supports_optimizations
from .prompts import ANALYSIS_SCHEMA_VERSION, build_system_prompt

__all__ = [
    'analyze_file',
    'get_file_extension',
    'get_file_type',
    'supports_optimizations',
    'ANALYSIS_SCHEMA_VERSION',
    'build_system_prompt'
]
