"""Shared test fixtures — sample patches and a scanning helper."""

from __future__ import annotations

import io
import textwrap
from typing import Callable, List

import pytest

from patchscan.scanner import Event, Scanner


@pytest.fixture
def scan() -> Callable[..., List[Event]]:
    """Return a helper that scans *text* and collects every event."""

    def _scan(text: str, **kwargs) -> List[Event]:
        return list(Scanner(io.BytesIO(text.encode("utf-8")), **kwargs))

    return _scan


@pytest.fixture
def unified_diff() -> str:
    """A plain unified diff with timestamps."""
    return textwrap.dedent("""\
        --- a/src/foo.c\t2024-01-01 10:00:00.000000000 +0000
        +++ b/src/foo.c\t2024-01-02 11:30:00.000000000 +0000
        @@ -1,3 +1,3 @@ int main(void)
         line1
        -old
        +new
         line3
    """)


@pytest.fixture
def unified_diff_with_preamble() -> str:
    """A mail-style patch: prose, then a diff, then a signature."""
    return textwrap.dedent("""\
        From: Someone <someone@example.com>
        Subject: [PATCH] fix it

        --- a/f.txt
        +++ b/f.txt
        @@ -1 +1 @@
        -a
        +b
        --
        2.43.0
    """)


@pytest.fixture
def git_new_file() -> str:
    """A git diff adding a file with content."""
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def git_empty_new_file() -> str:
    """A git diff adding an empty file — no ---/+++ lines at all."""
    return textwrap.dedent("""\
        diff --git a/empty.txt b/empty.txt
        new file mode 100644
        index 0000000..e69de29
    """)


@pytest.fixture
def git_deleted_file() -> str:
    return textwrap.dedent("""\
        diff --git a/gone.txt b/gone.txt
        deleted file mode 100644
        index 3b18e51..0000000
        --- a/gone.txt
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -hello
        -world
    """)


@pytest.fixture
def git_pure_rename() -> str:
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 100%
        rename from old_name.py
        rename to new_name.py
    """)


@pytest.fixture
def git_rename_with_edit() -> str:
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def git_copy() -> str:
    return textwrap.dedent("""\
        diff --git a/base.cfg b/copy.cfg
        similarity index 90%
        copy from base.cfg
        copy to copy.cfg
        index 1111111..2222222 100644
        --- a/base.cfg
        +++ b/copy.cfg
        @@ -1 +1 @@
        -x = 1
        +x = 2
    """)


@pytest.fixture
def git_mode_change() -> str:
    """A diff with only a file mode change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def git_binary() -> str:
    """A diff with a binary file."""
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        index 0000000..abc1234
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def git_binary_patch() -> str:
    return textwrap.dedent("""\
        diff --git a/logo.bin b/logo.bin
        index 1234567..89abcde 100644
        GIT binary patch
        literal 4
        LcmZQzWMT#Y01f~L

    """)


@pytest.fixture
def git_multi_file() -> str:
    """Three files: an edit, an empty new file, and a mode change."""
    return textwrap.dedent("""\
        diff --git a/src/app.py b/src/app.py
        index 1234567..abcdef0 100644
        --- a/src/app.py
        +++ b/src/app.py
        @@ -10,2 +10,3 @@ def run():
             setup()
        +    check()
             go()
        diff --git a/docs/empty.md b/docs/empty.md
        new file mode 100644
        index 0000000..e69de29
        diff --git a/bin/tool b/bin/tool
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def no_newline_diff() -> str:
    """A diff with 'No newline at end of file' marker."""
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        new file mode 100644
        index 0000000..abc1234
        --- /dev/null
        +++ b/data.txt
        @@ -0,0 +1 @@
        +final line without newline
        \\ No newline at end of file
    """)


@pytest.fixture
def context_diff() -> str:
    """A context diff with two hunks."""
    return textwrap.dedent("""\
        *** a/file.c\t2024-01-01 00:00:00.000000000 +0000
        --- b/file.c\t2024-01-02 00:00:00.000000000 +0000
        ***************
        *** 1,3 ****
          one
        ! two
          three
        --- 1,3 ----
          one
        ! TWO
          three
        ***************
        *** 10,11 ****
          ten
        - eleven
        --- 10 ----
          ten
    """)


@pytest.fixture
def context_new_file() -> str:
    """A context diff creating a file: epoch timestamp on the old side."""
    return textwrap.dedent("""\
        *** /dev/null\t1970-01-01 00:00:00.000000000 +0000
        --- new.txt\t2024-05-05 12:00:00.000000000 +0000
        ***************
        *** 0 ****
        --- 1,2 ----
        + alpha
        + beta
    """)
