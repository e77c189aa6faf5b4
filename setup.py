"""
Setup script for logos-core.

logos-core is the scheduling core of an adaptive language-learning
system. It provides four components:

1. Ability Estimator - 2PL IRT theta estimation
2. Retention Scheduler - FSRS-style spaced repetition
3. Priority Ranker - additive item priority and review urgency
4. Curriculum Sequencer - prerequisite-aware ordering and session packing
"""

from setuptools import find_packages, setup

setup(
    name="logos-core",
    version="0.1.0",
    description="Adaptive learning scheduling core: IRT ability, FSRS retention, priority and curriculum",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Logos",
    packages=find_packages(include=["logos_core", "logos_core.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Numerics
        "numpy>=1.24.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition irt fsrs education curriculum",
)
