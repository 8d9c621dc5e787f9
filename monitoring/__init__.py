"""
Monitoring Module

Contains the registration scraping pipeline:
- Browser automation against the registration form
- Row extraction
- Failure screenshots
- Run orchestration
"""
