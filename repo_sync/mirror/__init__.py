"""
Mirror — Clone, branch, fork and push source-org repos into a build org.
"""
