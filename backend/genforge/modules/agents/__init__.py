"""
Pipeline agents for GenForge
"""

from genforge.modules.agents.base_agent import BaseAgent, AgentContext
from genforge.modules.agents.domain_classifier_agent import DomainClassifier
from genforge.modules.agents.architect_agent import ArchitectAgent
from genforge.modules.agents.designer_agent import DesignerAgent
from genforge.modules.agents.developer_agent import DeveloperAgent
from genforge.modules.agents.reviewer_agent import ReviewerAgent
from genforge.modules.agents.tester_agent import TesterAgent

__all__ = [
    # Base classes
    'BaseAgent',
    'AgentContext',

    # Classification
    'DomainClassifier',

    # Pipeline agents
    'ArchitectAgent',
    'DesignerAgent',
    'DeveloperAgent',
    'ReviewerAgent',
    'TesterAgent',
]
