"""
Cough Survey backend: audio snippet labeling sessions and response statistics.
"""
