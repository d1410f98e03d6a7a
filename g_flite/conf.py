"""
Configuration Module
Constants and environment driven defaults for g_flite.
"""

import os
import tempfile
from datetime import timedelta

# CLI defaults
DEFAULT_NUM_SUBTASKS = 6
DEFAULT_ADDRESS = os.getenv('G_FLITE_ADDRESS', '127.0.0.1')
DEFAULT_PORT = int(os.getenv('G_FLITE_PORT', '61000'))
DEFAULT_DATADIR = os.getenv('G_FLITE_DATADIR', '~/datadir1/rinkeby')

# Payload shipped to the compute network
JS_NAME = 'flite.js'
WASM_NAME = 'flite.wasm'
# Not redistributed: --assets is required unless this is set
ASSETS_DIR = os.getenv('G_FLITE_ASSETS_DIR')

# Task descriptor
TASK_TYPE = 'wasm'
TASK_NAME = 'g_flite'
TASK_BID = 1
TASK_TIMEOUT = timedelta(minutes=10)
SUBTASK_TIMEOUT = timedelta(minutes=10)
SUBTASK_INPUT_FILE = 'in.txt'
SUBTASK_OUTPUT_FILE = 'in.wav'

# Workspace
WORKSPACE_ROOT = os.getenv('G_FLITE_WORKSPACE', tempfile.gettempdir())
WORKSPACE_PREFIX = 'g_flite_'

# Remote calls (seconds)
REQUEST_TIMEOUT = float(os.getenv('G_FLITE_REQUEST_TIMEOUT', '30'))
POLL_INTERVAL = float(os.getenv('G_FLITE_POLL_INTERVAL', '1.0'))
POLL_TIMEOUT = float(os.getenv('G_FLITE_POLL_TIMEOUT', '0')) or None  # 0 = no deadline
POLL_MAX_RETRIES = 3
