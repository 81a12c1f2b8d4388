"""
Runnable entry points built on the retail client.

Services:
    demo: End-to-end walkthrough of the REST and streaming APIs
"""
