"""Shell wrapper functions printed by ``atuin-z init``.

Each wrapper defines ``z``: it passes ``$PWD`` through ``ATUIN_Z_PWD``, runs
listing, help and exclusion commands directly, and otherwise ``cd``s into
whatever the binary prints. Empty output means no match, so the shell stays
where it is.
"""

from __future__ import annotations

from enum import Enum


class Shell(str, Enum):
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"


_POSIX_WRAPPER = """\
z() {
    if [ $# -eq 0 ]; then
        cd ~
        return
    fi

    case "$1" in
        -x|--exclude)
            shift
            if [ $# -eq 0 ]; then
                ATUIN_Z_PWD="$PWD" atuin-z -x
            else
                ATUIN_Z_PWD="$PWD" atuin-z -x -- "$@"
            fi
            return
            ;;
        -l|--list|-h|--help|--version)
            ATUIN_Z_PWD="$PWD" atuin-z "$@"
            return
            ;;
    esac

    local result
    result="$(ATUIN_Z_PWD="$PWD" atuin-z "$@")" || return
    if [ -n "$result" ]; then
        cd "$result"
    fi
}
"""

_FISH_WRAPPER = """\
function z
    if test (count $argv) -eq 0
        cd ~
        return
    end

    switch $argv[1]
        case -x --exclude
            if test (count $argv) -eq 1
                ATUIN_Z_PWD=$PWD atuin-z -x
            else
                ATUIN_Z_PWD=$PWD atuin-z -x -- $argv[2..-1]
            end
            return
        case -l --list -h --help --version
            ATUIN_Z_PWD=$PWD atuin-z $argv
            return
    end

    set -l result (ATUIN_Z_PWD=$PWD atuin-z $argv)
    or return
    if test -n "$result"
        cd $result
    end
end
"""

_WRAPPERS: dict[Shell, str] = {
    Shell.BASH: _POSIX_WRAPPER,
    Shell.ZSH: _POSIX_WRAPPER,
    Shell.FISH: _FISH_WRAPPER,
}


def init_script(shell: Shell) -> str:
    return _WRAPPERS[shell]
