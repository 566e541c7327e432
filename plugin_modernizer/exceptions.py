"""
Custom exceptions for the Plugin Modernizer.
"""


class ModernizerError(Exception):
    """Base exception class for all Plugin Modernizer errors."""
    pass


class VersionParseError(ModernizerError, ValueError):
    """Raised when a version string cannot be parsed."""
    
    def __init__(self, message: str, version: str = None):
        self.version = version
        
        if version is not None:
            message = f"Invalid version '{version}': {message}"
        
        super().__init__(message)


class CacheError(ModernizerError):
    """Raised when a cached payload is corrupt or unreadable."""
    
    def __init__(self, message: str, file_path: str = None):
        self.file_path = file_path
        
        if file_path:
            message = f"Cache error in '{file_path}': {message}"
        
        super().__init__(message)


class MetadataDownloadError(ModernizerError):
    """Raised when remote metadata cannot be downloaded or decoded."""
    
    def __init__(self, message: str, url: str = None):
        self.url = url
        
        if url:
            message = f"Failed to download '{url}': {message}"
        
        super().__init__(message)


class MetadataNotFoundError(ModernizerError):
    """Raised when a component cannot be found in remote metadata."""
    
    def __init__(self, message: str, component_name: str = None):
        self.component_name = component_name
        
        if component_name:
            message = f"{message} (plugin: {component_name})"
        
        super().__init__(message)


class ComponentProcessingError(ModernizerError):
    """Error recorded against a single component during a run."""
    
    def __init__(self, message: str, component_name: str = None, stage: str = None,
                 cause: Exception = None):
        self.message = message
        self.component_name = component_name
        self.stage = stage
        self.cause = cause
        super().__init__(message)
    
    def __str__(self):
        text = self.message
        if self.stage:
            text = f"[{self.stage}] {text}"
        if self.cause is not None:
            text += f": {self.cause}"
        return text


class ConfigurationError(ModernizerError):
    """Raised when configuration is invalid."""
    pass


class ReportGenerationError(ModernizerError):
    """Raised when report generation fails."""
    
    def __init__(self, message: str, format_name: str = None, output_path: str = None):
        self.format_name = format_name
        self.output_path = output_path
        
        if format_name:
            message = f"Report generation error for format '{format_name}': {message}"
            if output_path:
                message += f" (output: {output_path})"
        
        super().__init__(message)
