"""Keystone Vault Meta information.
   Keystone Vault encrypts stored credentials and suggests them per website.
"""
__title__ = 'keystone_vault'
__description__ = (
   'Keystone Vault encrypts stored credentials at rest and '
   'suggests them for the website being visited.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2026 Keystone Vault Team'
__author__ = 'Keystone Vault Team'
__author_email__ = 'dev@keystone-vault.local'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/keystone-vault/keystone-vault'
