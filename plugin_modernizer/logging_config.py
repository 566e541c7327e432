"""
Logging configuration for the Plugin Modernizer.
"""

import logging
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels."""
    
    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'      # Reset
    }
    
    def format(self, record):
        # Color a copy so file handlers sharing the record stay plain
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"
        
        return super().format(record)


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter scoping every message to one component."""
    
    def process(self, msg, kwargs):
        extra = dict(kwargs.get('extra') or {})
        extra.setdefault('component', self.extra['component'])
        kwargs['extra'] = extra
        return f"[{self.extra['component']}] {msg}", kwargs


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up logging configuration for the application.
    
    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        
    Returns:
        Configured logger instance
    """
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    
    logger = logging.getLogger('plugin_modernizer')
    logger.setLevel(logging.DEBUG if log_file else numeric_level)
    
    # Clear any existing handlers
    logger.handlers.clear()
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(ColoredFormatter('%(levelname)s - %(message)s'))
    logger.addHandler(console_handler)
    
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        
        file_format = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        file_handler.setFormatter(logging.Formatter(file_format))
        logger.addHandler(file_handler)
    
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.
    
    Args:
        name: Name of the module/logger
        
    Returns:
        Logger instance
    """
    return logging.getLogger(f'plugin_modernizer.{name}')


def component_logger(component, logger: Optional[logging.Logger] = None) -> ComponentLoggerAdapter:
    """
    Build a logger scoped to a single component.
    
    Args:
        component: Component (or plain name) the messages belong to
        logger: Underlying logger, defaults to the pipeline logger
        
    Returns:
        ComponentLoggerAdapter prefixing messages with the component name
    """
    name = getattr(component, 'name', component)
    return ComponentLoggerAdapter(logger or get_logger('pipeline'), {'component': name})
