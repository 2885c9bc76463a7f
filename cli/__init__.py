"""
GenForge command line interface
"""
