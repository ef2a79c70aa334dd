"""
Services — filesystem, bundler and watcher around the core pipeline.
"""

from .bundler import BundleResult, EsbuildBundler, compile_document
from .documents import DocumentStore, Screen, screen_file_name
from .watcher import ChangeWatcher
from .pipeline import PreviewPipeline

__all__ = [
    'BundleResult', 'EsbuildBundler', 'compile_document',
    'DocumentStore', 'Screen', 'screen_file_name',
    'ChangeWatcher',
    'PreviewPipeline',
]
