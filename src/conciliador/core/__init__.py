"""Núcleo del motor: extracción, validación, jerarquía, conciliación y proyección.

English: Engine core: extraction, validation, hierarchy, reconciliation and projection.
"""
