GITHUB = 'https://github.com/'
BITBUCKET = 'https://bitbucket.org/'

VCS_KINDS = ('bzr', 'git', 'hg', 'svn')

# Tokens go-source display templates hand to the documentation site.
DISPLAY_TOKENS = ('{dir}', '{/dir}', '{file}', '{line}')


def infer_vcs(repo: str) -> str | None:
    """Version control kind implied by the repository host, if any."""
    if repo.startswith(GITHUB):
        return 'git'
    return None


def infer_display(repo: str) -> str:
    """
    Default go-source display templates (home, directory, file) for known hosts.

    Returns an empty string for hosts with no known layout.
    """
    if repo.startswith(GITHUB):
        return f'{repo} {repo}/tree/master{{/dir}} {repo}/blob/master{{/dir}}/{{file}}#L{{line}}'
    if repo.startswith(BITBUCKET):
        return f'{repo} {repo}/src/default{{/dir}} {repo}/src/default{{/dir}}/{{file}}#{{file}}-{{line}}'
    return ''