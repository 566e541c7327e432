"""
Static parsing of a plugin build descriptor (pom.xml).

Only reads the few facts needed before any build has run, so it never
resolves parents or interpolates properties.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import defusedxml.ElementTree as ET

logger = logging.getLogger(__name__)


class StaticPomParser:
    """Reads SCM and property values from a pom.xml without Maven."""
    
    def __init__(self, pom_path: str):
        """
        Parse a pom file.
        
        Args:
            pom_path: Path to pom.xml
            
        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid XML
        """
        self.pom_path = Path(pom_path)
        try:
            self.root = ET.parse(str(self.pom_path)).getroot()
        except ET.ParseError as e:
            raise ValueError(f"Invalid pom file {self.pom_path}: {e}") from e
    
    def _text(self, path: str) -> Optional[str]:
        # {*} matches the Maven POM namespace as well as none
        element = self.root.find('/'.join(f'{{*}}{part}' for part in path.split('/')))
        if element is None or element.text is None:
            return None
        return element.text.strip() or None
    
    def get_properties(self) -> Dict[str, str]:
        properties = self.root.find('{*}properties')
        if properties is None:
            return {}
        return {
            child.tag.rsplit('}', 1)[-1]: (child.text or '').strip()
            for child in properties
            if isinstance(child.tag, str)
        }
    
    def get_github_repo_property(self) -> Optional[str]:
        return self.get_properties().get('gitHubRepo') or None
    
    def get_scm_connection(self) -> Optional[str]:
        return self._text('scm/connection')
    
    def get_baseline(self) -> Optional[str]:
        """Declared platform baseline (the jenkins.version property)."""
        return self.get_properties().get('jenkins.version') or None
