from setuptools import setup

package_name = 'trajectory_curves'

setup(
    name=package_name,
    version='0.1.0',
    packages=[package_name],
    package_dir={package_name: 'src'},
    python_requires='>=3.10',
    install_requires=['setuptools', 'numpy', 'scipy'],
    zip_safe=True,
    maintainer='root',
    maintainer_email='franche1984@gmail.com',
    description='Local-support trajectory curves with SE(3) correction composition',
    license='MIT',
    tests_require=['pytest'],
    extras_require={
        'test': ['pytest'],
    },
)
