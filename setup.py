from setuptools import setup

setup(
    name="promptmap",
    version="0.1.0",
    description="Convert prompt documents between Markdown and editable trees",
    license="MIT",
    packages=["promptmap"],
    python_requires=">=3.7",
    install_requires=[
        "PyYAML>=5.1",
        "mistletoe>=1.0,<2",
        "networkx>=2.5",
    ],
    extras_require={"test": ["pytest>=6"]},
    entry_points={"console_scripts": ["promptmap = promptmap.cli:main"]},
)
