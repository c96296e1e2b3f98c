"""Dental Classifier Client.

Submit a dental image to a remote classification service and follow the
submission through validation, cold-start retries and completion.
"""
