MARKDOWN_EXTENSIONS = ("md", "markdown", "txt")

# Code files that also get optimization and refactoring suggestions
OPTIMIZABLE_EXTENSIONS = ("ts", "js", "tsx", "jsx")


def get_file_extension(file_name: str) -> str:
    """Return the lower-cased text after the last '.', or '' if the name has no dot"""
    if "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[1].lower()


def get_file_type(file_name: str) -> str:
    """Classify a file as 'markdown' or 'code' by its extension"""
    return "markdown" if get_file_extension(file_name) in MARKDOWN_EXTENSIONS else "code"


def supports_optimizations(file_name: str) -> bool:
    return (
        get_file_type(file_name) == "code"
        and get_file_extension(file_name) in OPTIMIZABLE_EXTENSIONS
    )
