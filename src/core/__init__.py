"""Core domain package for linelens.

Core contains segmentation, language profiles, the issue index and the
selection contract without any terminal or UI-specific code, keeping the
business logic portable.
"""
