"""
PR Tests Package

- test_workflow.py: status rules and group status projection
- test_requests.py: request creation, manager decisions and row edits
- test_drafts.py: site engineer drafts
"""
