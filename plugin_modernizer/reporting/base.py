"""
Abstract base classes for report generation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..exceptions import ReportGenerationError
from ..models import RunReport


class ReportGenerator(ABC):
    """Abstract base class for report generators."""
    
    @abstractmethod
    def generate_report(self, run_report: RunReport, output_path: Optional[str] = None) -> str:
        """
        Generate a report from the outcome of a run.
        
        Args:
            run_report: RunReport to generate report from
            output_path: Optional path to write report to file
            
        Returns:
            Report content as string
            
        Raises:
            ReportGenerationError: If the report cannot be written
        """
        pass
    
    @abstractmethod
    def get_format_name(self) -> str:
        """
        Get the name of the report format.
        
        Returns:
            String identifier for the report format (e.g., "json", "text")
        """
        pass
    
    def _write(self, content: str, output_path: str) -> None:
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise ReportGenerationError(f"Cannot write report: {e}", self.get_format_name(), output_path)
