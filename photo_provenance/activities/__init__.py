"""Pipeline activity functions.

Each activity performs a single unit of work for one image or one run:
- plan_resize: Choose the device canvas and resolve the fit mode
- load_locations: Parse the location CSV and pick an origin coordinate
- fuzz_location: Perturb an origin within a radius in metres
- convert_time: Parse the capture time and derive the UTC instant
- build_metadata: Compose the per-image tag mapping
- resample_image: Probe and resample pixels with Pillow
- write_tags: Strip and write tags with ExifTool
- finalize_output: Embed the thumbnail and set file timestamps
"""
