from .app import FailureBrowserApp, FailureBrowserScreen, render_record

__all__ = ['FailureBrowserApp', 'FailureBrowserScreen', 'render_record']
