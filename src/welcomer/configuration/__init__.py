"""
Configuration package for Welcomer.

Public API:
    - app_config: Shared AppConfig instance loaded from ./config/app_config.yml
    - AppConfig: YAML-backed configuration accessor
    - WelcomeSettings / AutoRoleSettings: typed views over handler sections
"""
