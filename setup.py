from setuptools import setup, find_packages

setup(
    name="bizloan",
    version="0.1.0",
    description="Small-business financing feasibility engine (amortization, cash flow, NPV/IRR/payback/DSCR, verdict)",
    python_requires=">=3.9",
    packages=find_packages(
        include=["bizloan", "bizloan.*"], exclude=["tests*", "scenarios*"]
    ),
    install_requires=[
        "numpy",
        "pandas",
        "openpyxl",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
