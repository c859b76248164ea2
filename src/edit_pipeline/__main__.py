"""
パッケージとして実行するためのエントリポイント

【使用方法】
python -m edit_pipeline
python -m edit_pipeline --profile plain
"""

import sys

from edit_pipeline.capture_edit_pipeline import main

sys.exit(main())
