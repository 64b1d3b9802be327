from setuptools import setup

setup(
    name="plinekit",
    version="0.1.0",
    description="2D polyline geometry: lines and arcs, parallel offset and boolean operations",
    packages=["plinekit"],
    python_requires=">=3.8",
    install_requires=[
        "numpy",
    ],
)
