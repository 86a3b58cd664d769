#!/usr/bin/env python3
"""jira-flow - CLI 진입점.

설치 없이 저장소에서 바로 실행할 때 사용합니다:
    python main.py -n LPS-123 --transition "Start Progress"
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from jira_flow.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
