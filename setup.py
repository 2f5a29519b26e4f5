from setuptools import setup, find_packages

# Check if PyGObject (gi) is already available system-wide
# This prevents pip from trying to build PyGObject from source when it's
# already installed via system package manager (apt, pacman, etc.)
_HAS_PYGOBJECT = False
try:
    import gi
    gi.require_version('GLib', '2.0')
    from gi.repository import GLib
    _HAS_PYGOBJECT = True
except (ImportError, ValueError, AttributeError):
    _HAS_PYGOBJECT = False

# Base requirements - always needed
install_requires = [
    "dbus-python>=1.2.0",
    "PyYAML>=6.0",
]

extras_require = {
    "test": ["pytest>=8.0.0"],
}

# PyGObject drives the GLib main loop the BlueZ transport runs on.
# If not system-installed, add it to install_requires; otherwise keep it
# optional for users who prefer to manage it via pip.
if not _HAS_PYGOBJECT:
    install_requires.append("PyGObject>=3.48.0")
else:
    extras_require["gi"] = ["PyGObject>=3.48.0"]

setup(
    name="zeicube",
    version="0.3.0",
    description="Connection manager and orientation decoder for the Timeular ZEI cube",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        'console_scripts': [
            'zeicube=zeicube.cli:main',
        ],
    },
    python_requires='>=3.8',
)
