"""
GenForge - prompt-to-app generation engine

Job queue, domain classifier, prompt registry with execution cache and
quality gate, structured-output repair and the multi-phase artifact pipeline.
"""

__version__ = "1.0.0"
