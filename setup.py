from setuptools import find_packages
from setuptools import setup


def get_version():
    with open("scoresim/core.py") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"')
    raise RuntimeError("Unable to find the version string")


def main():
    setup(
        name="scoresim",
        version=get_version(),
        description=(
            "Simulate reassortment networks under the structured coalescent "
            "with an immigrant time window"
        ),
        license="GPLv3+",
        classifiers=[
            "Programming Language :: Python :: 3",
            "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
            "Topic :: Scientific/Engineering :: Bio-Informatics",
        ],
        packages=find_packages(include=["scoresim", "scoresim.*"]),
        python_requires=">=3.9",
        install_requires=["numpy", "tskit>=0.5", "daiquiri"],
        extras_require={"test": ["pytest"]},
        entry_points={"console_scripts": ["scoresim=scoresim.cli:scoresim_main"]},
    )


if __name__ == "__main__":
    main()
