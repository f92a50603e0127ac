__version__ = "0.1.0"

def compile_project_dir(directory, **kwargs):
    from .compiler import compile_project
    from .project import Project
    return list(compile_project(Project.load(directory), **kwargs))

__all__ = ["__version__", "compile_project_dir"]
